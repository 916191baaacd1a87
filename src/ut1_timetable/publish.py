"""Writing and deploying the generated calendar."""

import shutil
import subprocess
from pathlib import Path

from ut1_timetable.errors import PermanentError
from ut1_timetable.logging import get_logger

log = get_logger(__name__)


def write_calendar(text: str, path: str | Path) -> Path:
    """Write the calendar as UTF-8, keeping its CRLF line endings."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8", newline="") as f:
        f.write(text)
    log.info("calendar_written", path=str(out), bytes=out.stat().st_size)
    return out


def deploy_calendar(path: str | Path, target: str, remote_host: str = "") -> None:
    """Copy the calendar to where it is served.

    Args:
        path: The written calendar file.
        target: Destination path (local, or on remote_host).
        remote_host: If set, the file is sent with scp to remote_host:target.

    Raises:
        PermanentError: If the copy fails.
    """
    if not target:
        log.debug("deploy_skipped", reason="no_target")
        return

    if remote_host:
        destination = f"{remote_host}:{target}"
        try:
            subprocess.run(["scp", str(path), destination], check=True, capture_output=True)
        except (OSError, subprocess.CalledProcessError) as e:
            raise PermanentError(f"scp to {destination} failed: {e}") from e
        log.info("calendar_deployed", destination=destination, method="scp")
        return

    try:
        shutil.copyfile(path, target)
    except OSError as e:
        raise PermanentError(f"Copy to {target} failed: {e}") from e
    log.info("calendar_deployed", destination=target, method="copy")

from ut1_timetable.cli import run

if __name__ == "__main__":
    run()

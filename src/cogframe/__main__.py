from cogframe.client import run

if __name__ == "__main__":
    run()

from .cli import phylodraw_main

if __name__ == "__main__":
    phylodraw_main()

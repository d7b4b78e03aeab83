from npm_switcher.cli import main

if __name__ == "__main__":
    main()

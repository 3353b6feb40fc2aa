from vivid.cli import main

main()

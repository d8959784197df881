from glone.cli.app import main

main()

from tokenproxy.cli.main import main


main()

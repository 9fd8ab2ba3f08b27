from lan_discovery.main import main

main()

from finchat.server import main

main()

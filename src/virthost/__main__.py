from virthost.app import main

main()

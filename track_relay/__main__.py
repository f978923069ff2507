from track_relay.cli import main

main()

from passmr.cli import main

main()

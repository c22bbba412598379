from parley.core.cli import main

main()

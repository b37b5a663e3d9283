from installcheck.cli import main

main()

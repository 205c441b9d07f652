from urlcanon.cli import main

main()

from skeletor.cli import main

main()

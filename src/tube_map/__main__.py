from src.tube_map.cli import main

main()

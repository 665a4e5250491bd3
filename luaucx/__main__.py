from luaucx.cli import main

main()

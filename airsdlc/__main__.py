from airsdlc.cli import main

main()

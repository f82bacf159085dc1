from botdash.app import main

main()

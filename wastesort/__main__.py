from wastesort.web.app import main

main()

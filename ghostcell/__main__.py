from ghostcell.bot import main

main()

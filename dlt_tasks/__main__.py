from dlt_tasks.cli.ctl import main

main()

from motor_client.run_gui import main

main()

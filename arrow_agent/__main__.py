from arrow_agent.agent_runtime.run import main

main()

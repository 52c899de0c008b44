"""
Entry point that prepares the ticket database.
"""

import asyncio

from tickets.bootstrap import ApplicationConfig, main

if __name__ == "__main__":
    # Check .env.example for environment variables configuration
    config: ApplicationConfig = {
        "dev_mode": False,
        "dotenv_path": ".env",
    }

    asyncio.run(main(config=config), debug=config.get("dev_mode", False))

"""Command line interface for testing configuration loading"""
from . import settings_conf
from pathlib import Path

def main():
    """Display loaded configuration"""
    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        print(f"{key}: {value}")

    # Save example configuration file
    examples_dir = Path("examples")
    examples_dir.mkdir(exist_ok=True)

    with open(examples_dir / "settings.conf.example", "w") as f:
        f.write("""[DEFAULT]
# PostgreSQL connection URL
db_url = postgresql://postgres@localhost:5432/space
# Store backend: postgres or memory (development fallback)
store_backend = postgres
api_host = 0.0.0.0
api_port = 3000
# Stake address assigned to new spaces
default_stake_address = HiTfqcaU6XwKVYcudqCLAZKzCFjCyXQxZ1LQkn2PcEks
# Used by the client toolkit
api_base_url = http://localhost:3000
rpc_url = https://api.devnet.solana.com
min_stake_amount = 0.001
db_retry_attempts = 3
db_retry_delay = 2
""")

if __name__ == "__main__":
    main()

"""Example: Call a contract on Holesky from Sepolia with a generic message"""

import logging
import sys

from sygma_messaging import run_from_env


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # PRIVATE_KEY is read from the environment or a .env file
    sys.exit(run_from_env())


if __name__ == '__main__':
    main()

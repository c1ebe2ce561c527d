"""Example: connect a local-key wallet, read the counter, increment it, and read again."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from counter_dapp import Orchestrator, OrchestratorState, load_config_from_env
from counter_dapp.evm import LocalAccountWallet, Web3ChainClient

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOGLEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


async def main() -> None:
    """Walk the counter through one confirmed increment."""

    config, wallet_config = load_config_from_env()
    if wallet_config is None:
        raise ValueError("PRIVATE_KEY not found in environment variables")

    wallet, connections = LocalAccountWallet.from_config(wallet_config)
    client = Web3ChainClient.from_config(config, connections)
    dapp = Orchestrator(wallet, client, config)

    snapshot = await dapp.connect()
    if snapshot.state is OrchestratorState.NOT_CONNECTED:
        logging.error("Connection failed: %s", snapshot.errors.connection)
        return

    try:
        if snapshot.state is OrchestratorState.WRONG_NETWORK:
            logging.info("Wallet on %s; switching", snapshot.network.display_name)
            if not await dapp.switch_network():
                logging.error("Switch failed: %s", dapp.errors.network)
                return

        count = await dapp.read()
        logging.info("Count before: %s", count.value)
        await dapp.drain()
        balance = dapp.balance.value
        logging.info("Balance: %s", balance.formatted if balance else "-")

        submission = dapp.increment()
        if not submission:
            logging.error("Increment not allowed: %s", submission.reason)
            return

        tx = await dapp.wait_for_transaction()
        await dapp.drain()
        if tx is not None:
            logging.info("Transaction %s finished in phase %s", tx.hash, tx.phase.value)
        logging.info("Count after: %s", dapp.count.value)
    finally:
        dapp.disconnect()


if __name__ == "__main__":
    asyncio.run(main())

import asyncio
import logging

from ledger_actors.api import create_broker, create_and_register, tell, terminate_all
from ledger_actors.messaging import Deposit, GetBalance, Mature, Transfer, Withdraw


async def setup():
    """Register the demo accounts and transfer actors."""
    await create_and_register("savings", "AccountA", {"account_id": "A", "initial_balance": 100})
    await create_and_register("savings", "AccountB", {"account_id": "B", "initial_balance": 50})
    await create_and_register("transfer", "ActionActor", {"source_account_id": "A", "destination_account_id": "B"})
    await create_and_register("transfer", "ActionActor2", {"source_account_id": "A", "destination_account_id": "C"})
    await create_and_register("funds", "fundA", {"account_id": "fA", "initial_balance": 100})
    await create_and_register("transfer", "fA_Transfer_A", {"source_account_id": "fA", "destination_account_id": "A"})
    await create_and_register("transfer", "A_Transfer_fA", {"source_account_id": "A", "destination_account_id": "fA"})


async def balances():
    print("\nBalances:")
    await tell("AccountA", GetBalance())
    await tell("AccountB", GetBalance())
    await tell("AccountA", Deposit(amount=50))
    await tell("AccountB", Withdraw(amount=30))
    await tell("fundA", GetBalance())


async def transfers():
    print("\nTransfers:")
    for transfer_actor in ("ActionActor", "ActionActor2", "fA_Transfer_A", "A_Transfer_fA"):
        await tell(transfer_actor, Transfer(amount=10))


async def funds():
    print("\nFunds:")
    await tell("fundA", Deposit(amount=50))
    await tell("fundA", Mature(to_id="A"))


async def main():
    """Main function."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
    await create_broker()

    try:
        await setup()

        await asyncio.sleep(0.5)
        await balances()

        await asyncio.sleep(0.3)
        await transfers()

        await asyncio.sleep(0.2)
        await funds()

        await asyncio.sleep(1.0)
    finally:
        await terminate_all()
        print("Broker shut down")


if __name__ == "__main__":
    asyncio.run(main())

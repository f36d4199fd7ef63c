import asyncio

from dotenv import load_dotenv

load_dotenv()

from sdk.catalog_client import AsyncCatalogClient
from sdk.state import CatalogState


async def main():
    client = AsyncCatalogClient()
    state = CatalogState(client)
    state.subscribe(lambda event: print(f"  [{event.type.value}] {event.message}") if event.message else None)

    try:
        await state.seed()
        target = state.view()[0]
        pid = target["id"]
        print(f"\n🎯 Target: {target['name']} (stock {target['stock']})")

        # Fire an update and a confirmed delete for the same record at once
        print("\n⚡ Racing an edit against a delete...")
        state.remove(pid)
        edit, removed = await asyncio.gather(
            state.update(pid, {"stock": 3}),
            state.confirm_remove(),
        )
        print(f"  edit: ok={edit.ok} stale={edit.stale}")
        print(f"  delete: ok={removed.ok}")

        # Show final state
        print("\n📦 Snapshot contains target:", state.get(pid) is not None)
        await state.load()
        print("📦 Server contains target:", state.get(pid) is not None)
        print("📦 Products left:", state.count)
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())

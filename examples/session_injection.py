"""Example showing session injection and a custom retry policy."""

import asyncio
from datetime import date, timedelta

from aiohttp import ClientSession

from pymelcloudhvac import ExponentialBackoff, MelCloudClient, TransientNetworkError


async def main() -> None:
    """Use an application-managed session and fetch last week's energy use."""
    async with ClientSession() as session:
        client = MelCloudClient(
            email="your@email.com",
            password="your_password",
            session=session,
            # Five attempts, waiting 2s, 4s, 8s and 16s in between
            backoff=ExponentialBackoff(base_delay=2.0, max_retries=5),
        )

        async with client:
            today = date.today()

            for device in await client.list_devices():
                try:
                    report = await client.get_energy_report(
                        device.id, today - timedelta(days=7), today, device.building_id
                    )
                except TransientNetworkError as err:
                    print(f"{device.name}: service unavailable ({err})")
                    continue

                print(f"{device.name}: {report.total_power_consumption:.2f} kWh over the last week")
                print(f"  Heating: {report.total_power_consumption_heating:.2f} kWh")
                print(f"  Cooling: {report.total_power_consumption_cooling:.2f} kWh")
                print(f"  Hot water: {report.total_power_consumption_hot_water:.2f} kWh")

        # Session remains open after client exits
        print("\nClient closed, but session still available for other requests")


if __name__ == "__main__":
    asyncio.run(main())

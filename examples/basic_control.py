"""Basic device control example for pymelcloudhvac.

This example demonstrates:
- Discovering air conditioners and heat pumps
- Changing several air conditioner settings in one command
- Setting heat pump tank and zone temperatures
"""

import asyncio
import logging

from pymelcloudhvac import AirConditionerUpdate, MelCloudClient, ValidationError


# Configure logging to see what's happening
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


async def main() -> None:
    """Main example function."""
    # Replace with your credentials
    email = "your@email.com"
    password = "your_password"

    async with MelCloudClient(email=email, password=password) as client:
        for device in await client.get_air_conditioners():
            print(f"\n{device.name}: switching to heat at 21 C with swinging vanes")

            # Only the supplied fields change; the rest is kept as it is
            device = await client.set_device(
                device.id,
                AirConditionerUpdate(mode="heat", temperature=21, vane_horizontal="swing", fan_speed="auto"),
                device.building_id,
            )
            state = device.air_conditioner
            if state is not None:
                print(f"  Now: {state.operation_mode}, {state.set_temperature} C, fan {state.fan_speed}")

        for device in await client.get_heat_pumps():
            print(f"\n{device.name}: tank to 50 C, zone 1 to 20.5 C")

            await client.set_tank_water_temperature(device.id, 50, device.building_id)
            device = await client.set_zone_temperature(device.id, 1, 20.5, device.building_id)

            if not device.capabilities.has_zone2:
                try:
                    await client.set_zone_temperature(device.id, 2, 20.5, device.building_id)
                except ValidationError as err:
                    print(f"  Zone 2 refused: {err}")


if __name__ == "__main__":
    asyncio.run(main())

"""Basic usage example for pymelcloudhvac library."""

import asyncio

from pymelcloudhvac import MelCloudClient


async def main() -> None:
    """List the devices of an account with their current state."""
    async with MelCloudClient(
        email="your@email.com",
        password="your_password",
    ) as client:
        devices = await client.list_devices()
        print(f"Found {len(devices)} device(s)")

        for device in devices:
            print(f"\n[{device.index}] {device.name} ({device.type_name})")
            print(f"  Device ID: {device.id}")
            print(f"  Building ID: {device.building_id}")
            print(f"  Online: {device.is_online}")
            print(f"  Powered: {device.is_powered_on}")

            if device.has_error:
                print(f"  Error {device.fault.error_code}: {device.fault.error_message}")

            if device.air_conditioner is not None:
                state = device.air_conditioner
                print(f"  Mode: {state.operation_mode}")
                print(f"  Room: {state.room_temperature} C, target: {state.set_temperature} C")
                print(f"  Fan: {state.fan_speed}, vanes: {state.vane_horizontal}/{state.vane_vertical}")

            if device.heat_pump is not None:
                state = device.heat_pump
                print(f"  Zone 1: {state.operation_mode_zone1}, target {state.set_temperature_zone1} C")
                print(f"  Tank: {state.tank_water_temperature} C, target {state.set_tank_water_temperature} C")
                print(f"  Forced hot water: {state.forced_hot_water_mode}")


if __name__ == "__main__":
    asyncio.run(main())

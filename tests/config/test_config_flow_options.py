"""Tests for Hotpot options flow."""

from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType
from pytest_homeassistant_custom_component.common import MockConfigEntry

NEW_CHANNEL_INPUT = {
    "channel_id": "UFH",
    "name": "Underfloor",
    "rule": "central_heating",
    "window": 0.5,
    "timeline_minimum": 5.0,
    "timeline_maximum": 25.0,
    "timeline_points": "00:00=16, 07:00=20\n22:00=16",
}


async def open_step(
    hass: HomeAssistant, entry: MockConfigEntry, step_id: str
) -> dict:
    """Open the options flow and pick a menu entry."""
    result = await hass.config_entries.options.async_init(entry.entry_id)
    return await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input={"next_step_id": step_id},
    )


async def test_options_flow_show_menu(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test that the options flow shows the menu."""
    mock_config_entry.add_to_hass(hass)

    result = await hass.config_entries.options.async_init(mock_config_entry.entry_id)

    assert result["type"] is FlowResultType.MENU
    assert result["step_id"] == "init"
    assert result["menu_options"] == ["add_channel", "manage_channels", "timing"]


async def test_options_flow_add_channel(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test adding a channel stores it with a parsed timeline."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "add_channel")
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "add_channel"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input=NEW_CHANNEL_INPUT
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    channels = mock_config_entry.options["channels"]
    assert [c["id"] for c in channels] == ["CH", "HW", "UFH"]
    assert channels[2] == {
        "id": "UFH",
        "name": "Underfloor",
        "rule": "central_heating",
        "window": 0.5,
        "temp_sensor": None,
        "pin_switch": None,
        "timeline": {
            "minimum": 5.0,
            "maximum": 25.0,
            "period": 86400.0,
            "points": [
                {"time": "00:00", "value": 16.0},
                {"time": "07:00", "value": 20.0},
                {"time": "22:00", "value": 16.0},
            ],
        },
    }
    # Timing is left untouched
    assert mock_config_entry.options["timing"]["valve_return"] == 0


async def test_options_flow_add_channel_id_from_name(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test the channel ID defaults to the slugified name."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "add_channel")
    user_input = {k: v for k, v in NEW_CHANNEL_INPUT.items() if k != "channel_id"}
    user_input["name"] = "Towel Rail"
    user_input["rule"] = "manual"
    del user_input["window"]

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input=user_input
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    channel = mock_config_entry.options["channels"][-1]
    assert channel["id"] == "towel_rail"
    assert channel["window"] == 0.0


async def test_options_flow_add_channel_duplicate_id(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test a channel ID that already exists is rejected."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "add_channel")
    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input={**NEW_CHANNEL_INPUT, "channel_id": "CH"}
    )

    assert result["type"] is FlowResultType.FORM
    assert result["errors"] == {"channel_id": "channel_id_exists"}


async def test_options_flow_add_channel_invalid_timeline(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test an unsorted timeline is rejected."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "add_channel")
    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input={**NEW_CHANNEL_INPUT, "timeline_points": "07:00=20, 06:00=16"},
    )

    assert result["type"] is FlowResultType.FORM
    assert result["errors"] == {"timeline_points": "invalid_timeline"}
    assert len(mock_config_entry.options["channels"]) == 2


async def test_options_flow_delete_channel(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test deleting a channel."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "manage_channels")
    assert result["step_id"] == "manage_channels"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input={"channel": "HW", "action": "delete"}
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert [c["id"] for c in mock_config_entry.options["channels"]] == ["CH"]


async def test_options_flow_edit_channel(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test editing a channel keeps its ID."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "manage_channels")
    result = await hass.config_entries.options.async_configure(
        result["flow_id"], user_input={"channel": "HW", "action": "edit"}
    )

    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "edit_channel"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input={
            "name": "Cylinder",
            "rule": "hot_water",
            "window": 4.0,
            "temp_sensor": "sensor.hw_temp",
            "pin_switch": "switch.hw_pin",
            "timeline_minimum": 0.0,
            "timeline_maximum": 70.0,
            "timeline_points": "00:00=45, 17:00=55",
        },
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    channel = mock_config_entry.options["channels"][1]
    assert channel["id"] == "HW"
    assert channel["name"] == "Cylinder"
    assert channel["window"] == 4.0
    assert [p["value"] for p in channel["timeline"]["points"]] == [45.0, 55.0]


async def test_options_flow_no_channels(
    hass: HomeAssistant,
    mock_config_entry_no_channels: MockConfigEntry,
) -> None:
    """Test managing channels aborts when there are none."""
    mock_config_entry_no_channels.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry_no_channels, "manage_channels")

    assert result["type"] is FlowResultType.ABORT
    assert result["reason"] == "no_channels"


async def test_options_flow_timing(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
) -> None:
    """Test updating timing parameters."""
    mock_config_entry.add_to_hass(hass)

    result = await open_step(hass, mock_config_entry, "timing")
    assert result["type"] is FlowResultType.FORM
    assert result["step_id"] == "timing"

    result = await hass.config_entries.options.async_configure(
        result["flow_id"],
        user_input={
            "valve_return": 6000,
            "rule_interval": 10000,
            "override_duration": 1800,
        },
    )

    assert result["type"] is FlowResultType.CREATE_ENTRY
    assert mock_config_entry.options["timing"] == {
        "valve_return": 6000,
        "rule_interval": 10000,
        "override_duration": 1800,
    }
    assert len(mock_config_entry.options["channels"]) == 2

"""Config flow for Hotpot."""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback
from homeassistant.helpers import selector
from slugify import slugify

from .const import (
    DEFAULT_TIMELINE,
    DEFAULT_TIMING,
    DEFAULT_WINDOW,
    DOMAIN,
    LOGGER,
    UI_TIMELINE_BOUND,
    UI_TIMING_OVERRIDE_DURATION,
    UI_TIMING_RULE_INTERVAL,
    UI_TIMING_VALVE_RETURN,
    UI_WINDOW,
    RuleType,
)
from .core.exceptions import TimelineError
from .core.timeline import (
    Timeline,
    TimelinePoint,
    format_points,
    parse_time_of_day,
)

CONF_NAME = "name"
CONF_CONTROLLER_ID = "controller_id"


def _number(bounds: dict[str, float], unit: str) -> selector.NumberSelector:
    return selector.NumberSelector(
        selector.NumberSelectorConfig(
            min=bounds["min"],
            max=bounds["max"],
            step=bounds["step"],
            unit_of_measurement=unit,
            mode=selector.NumberSelectorMode.BOX,
        )
    )


def _channel_schema(channel: dict[str, Any], *, new: bool) -> vol.Schema:
    """Build the add/edit channel form, prefilled from an existing channel."""
    timeline = channel.get("timeline", DEFAULT_TIMELINE)
    points = timeline.get("points", DEFAULT_TIMELINE["points"])
    if not isinstance(points, str):
        points = format_points(
            TimelinePoint(parse_time_of_day(point["time"]), float(point["value"]))
            for point in points
        )

    fields: dict[Any, Any] = {}
    if new:
        fields[vol.Optional("channel_id")] = selector.TextSelector()
    fields[vol.Required("name", default=channel.get("name", ""))] = (
        selector.TextSelector()
    )
    fields[
        vol.Required("rule", default=channel.get("rule", RuleType.CENTRAL_HEATING))
    ] = selector.SelectSelector(
        selector.SelectSelectorConfig(
            options=[rule.value for rule in RuleType],
            translation_key="rule",
        )
    )
    window_key = (
        vol.Optional("window", default=channel["window"])
        if channel.get("window") is not None
        else vol.Optional("window")
    )
    fields[window_key] = _number(UI_WINDOW, "°C")
    sensor_key = (
        vol.Optional("temp_sensor", default=channel["temp_sensor"])
        if channel.get("temp_sensor")
        else vol.Optional("temp_sensor")
    )
    fields[sensor_key] = selector.EntitySelector(
        selector.EntitySelectorConfig(domain="sensor")
    )
    switch_key = (
        vol.Optional("pin_switch", default=channel["pin_switch"])
        if channel.get("pin_switch")
        else vol.Optional("pin_switch")
    )
    fields[switch_key] = selector.EntitySelector(
        selector.EntitySelectorConfig(domain="switch")
    )
    fields[vol.Required("timeline_minimum", default=timeline["minimum"])] = _number(
        UI_TIMELINE_BOUND, "°C"
    )
    fields[vol.Required("timeline_maximum", default=timeline["maximum"])] = _number(
        UI_TIMELINE_BOUND, "°C"
    )
    fields[vol.Required("timeline_points", default=points)] = selector.TextSelector(
        selector.TextSelectorConfig(multiline=True)
    )
    return vol.Schema(fields)


def _channel_from_input(channel_id: str, user_input: dict[str, Any]) -> dict[str, Any]:
    """
    Build a stored channel from form input.

    Raises:
        TimelineError: If the timeline points or bounds are invalid.

    """
    timeline = Timeline.from_dict(
        {
            "minimum": user_input["timeline_minimum"],
            "maximum": user_input["timeline_maximum"],
            "period": DEFAULT_TIMELINE["period"],
            "points": user_input["timeline_points"],
        }
    )
    rule = RuleType(user_input["rule"])
    return {
        "id": channel_id,
        "name": user_input["name"],
        "rule": rule.value,
        "window": user_input.get("window", DEFAULT_WINDOW[rule]),
        "temp_sensor": user_input.get("temp_sensor"),
        "pin_switch": user_input.get("pin_switch"),
        "timeline": timeline.as_dict(),
    }


class HotpotFlowHandler(config_entries.ConfigFlow, domain=DOMAIN):
    """Config flow for Hotpot."""

    VERSION = 1

    async def async_step_user(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Handle a flow initialized by the user."""
        errors: dict[str, str] = {}

        if user_input is not None:
            controller_id = user_input.get(CONF_CONTROLLER_ID) or slugify(
                user_input[CONF_NAME], separator="_"
            )

            # Check for duplicate controller_id
            await self.async_set_unique_id(controller_id)
            self._abort_if_unique_id_configured()

            LOGGER.debug("Creating Hotpot entry: %s", controller_id)

            return self.async_create_entry(
                title=user_input[CONF_NAME],
                data={
                    CONF_NAME: user_input[CONF_NAME],
                    CONF_CONTROLLER_ID: controller_id,
                },
                options={
                    "timing": DEFAULT_TIMING.copy(),
                    "channels": [],
                },
            )

        return self.async_show_form(
            step_id="user",
            data_schema=vol.Schema(
                {
                    vol.Required(CONF_NAME): selector.TextSelector(
                        selector.TextSelectorConfig(type=selector.TextSelectorType.TEXT)
                    ),
                    vol.Optional(CONF_CONTROLLER_ID): selector.TextSelector(),
                }
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: config_entries.ConfigEntry,  # noqa: ARG004
    ) -> HotpotOptionsFlowHandler:
        """Get the options flow for this handler."""
        return HotpotOptionsFlowHandler()


class HotpotOptionsFlowHandler(config_entries.OptionsFlow):
    """Handle options flow for Hotpot."""

    def __init__(self) -> None:
        """Initialize options flow."""
        self._channel_to_edit: str | None = None

    async def async_step_init(
        self,
        _user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Manage options."""
        return self.async_show_menu(
            step_id="init",
            menu_options=["add_channel", "manage_channels", "timing"],
        )

    def _save_channels(
        self, channels: list[dict[str, Any]]
    ) -> config_entries.ConfigFlowResult:
        return self.async_create_entry(
            title="",
            data={
                **self.config_entry.options,
                "channels": channels,
            },
        )

    async def async_step_add_channel(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Add a new channel."""
        errors: dict[str, str] = {}

        if user_input is not None:
            channel_id = (user_input.get("channel_id") or "").strip() or slugify(
                user_input["name"], separator="_"
            )
            channels = list(self.config_entry.options.get("channels", []))

            if any(c["id"] == channel_id for c in channels):
                errors["channel_id"] = "channel_id_exists"
            else:
                try:
                    channels.append(_channel_from_input(channel_id, user_input))
                except TimelineError as err:
                    LOGGER.debug("Rejected timeline for %s: %s", channel_id, err)
                    errors["timeline_points"] = "invalid_timeline"
                else:
                    return self._save_channels(channels)

        return self.async_show_form(
            step_id="add_channel",
            data_schema=self.add_suggested_values_to_schema(
                _channel_schema({}, new=True), user_input or {}
            ),
            errors=errors,
        )

    async def async_step_manage_channels(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Manage existing channels."""
        channels = self.config_entry.options.get("channels", [])

        if not channels:
            return self.async_abort(reason="no_channels")

        if user_input is not None:
            selected = user_input.get("channel")
            action = user_input.get("action")

            if action == "delete":
                return self._save_channels(
                    [c for c in channels if c["id"] != selected]
                )
            if action == "edit":
                self._channel_to_edit = selected
                return await self.async_step_edit_channel()

        channel_options = [
            selector.SelectOptionDict(value=c["id"], label=c["name"]) for c in channels
        ]

        return self.async_show_form(
            step_id="manage_channels",
            data_schema=vol.Schema(
                {
                    vol.Required("channel"): selector.SelectSelector(
                        selector.SelectSelectorConfig(options=channel_options)
                    ),
                    vol.Required("action"): selector.SelectSelector(
                        selector.SelectSelectorConfig(
                            options=["edit", "delete"],
                            translation_key="channel_action",
                        )
                    ),
                }
            ),
        )

    async def async_step_edit_channel(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Edit an existing channel."""
        channels = list(self.config_entry.options.get("channels", []))
        index = next(
            (i for i, c in enumerate(channels) if c["id"] == self._channel_to_edit),
            None,
        )

        if index is None:
            return self.async_abort(reason="channel_not_found")

        errors: dict[str, str] = {}
        if user_input is not None:
            try:
                channels[index] = _channel_from_input(channels[index]["id"], user_input)
            except TimelineError as err:
                LOGGER.debug("Rejected timeline for %s: %s", channels[index]["id"], err)
                errors["timeline_points"] = "invalid_timeline"
            else:
                return self._save_channels(channels)

        return self.async_show_form(
            step_id="edit_channel",
            data_schema=_channel_schema(channels[index], new=False),
            errors=errors,
        )

    async def async_step_timing(
        self,
        user_input: dict[str, Any] | None = None,
    ) -> config_entries.ConfigFlowResult:
        """Configure timing parameters."""
        timing = {**DEFAULT_TIMING, **self.config_entry.options.get("timing", {})}

        if user_input is not None:
            return self.async_create_entry(
                title="",
                data={
                    **self.config_entry.options,
                    "timing": {
                        "valve_return": int(user_input["valve_return"]),
                        "rule_interval": int(user_input["rule_interval"]),
                        "override_duration": int(user_input["override_duration"]),
                    },
                },
            )

        return self.async_show_form(
            step_id="timing",
            data_schema=vol.Schema(
                {
                    vol.Required(
                        "valve_return", default=timing["valve_return"]
                    ): _number(UI_TIMING_VALVE_RETURN, "ms"),
                    vol.Required(
                        "rule_interval", default=timing["rule_interval"]
                    ): _number(UI_TIMING_RULE_INTERVAL, "ms"),
                    vol.Required(
                        "override_duration", default=timing["override_duration"]
                    ): _number(UI_TIMING_OVERRIDE_DURATION, "s"),
                }
            ),
        )


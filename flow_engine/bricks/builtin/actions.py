"""Built-in actions."""

import json
import logging
from typing import Any, Dict, List

from ...models.execution import LogLevel
from ...utils.template_filters import stringify
from ..base import ActionBrick

_TRUE_STRINGS = ("true", "1", "yes", "on")
_FALSE_STRINGS = ("false", "0", "no", "off", "")


def cast_value(value: Any, value_type: str = "auto") -> Any:
    """Cast a configured value to `value_type` (string, integer, float, boolean, json, auto)."""
    if value_type == "string":
        return stringify(value)
    if value_type == "integer":
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0
    if value_type == "float":
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0
    if value_type == "boolean":
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)
    if value_type == "json":
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except ValueError:
            return None
    return _auto_cast(value)


def _auto_cast(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "null":
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        pass
    if text[:1] in ("{", "[") and text[-1:] in ("}", "]"):
        try:
            return json.loads(text)
        except ValueError:
            return value
    return value


class SetVariable(ActionBrick):
    """Store one (`mode=single`) or many (`mode=multiple`) variables on the context."""

    label = "Set Variable"

    def _assignments(self) -> Dict[str, Any]:
        if self.config_value("mode", "single") == "multiple":
            variables = self.config_value("variables", {})
            return dict(variables) if isinstance(variables, dict) else {}
        name = self.config_value("variable_name", "")
        return {name: self.config.get("variable_value")} if name else {}

    def handle(self, context):
        value_type = self.config_value("value_type", "auto")
        assignments = self._assignments()
        for name, value in assignments.items():
            context.set(name, cast_value(value, value_type))
        context.info(f"SetVariable: set {', '.join(assignments) or 'nothing'}")
        return context

    def compensate(self, context):
        for name in self._assignments():
            context.forget(name)
        context.info("SetVariable: compensated")


class LogMessage(ActionBrick):
    """Write a message to the run log (and optionally the process log)."""

    label = "Log Message"
    required_fields = ("message",)

    def handle(self, context):
        message = stringify(self.config_value("message", ""))
        level = str(self.config_value("level", "info")).lower()
        if level not in {member.value for member in LogLevel}:
            level = LogLevel.INFO.value
        context.append_log(level, message)

        if self.config_value("log_to_logger", False):
            # stdlib has no NOTICE level
            stdlib_level = logging.INFO if level == "notice" else logging.getLevelName(level.upper())
            self.logger.log(stdlib_level, message)
        return context


class StopFlow(ActionBrick):
    """Stop the run. `stop_type=fail` ends the run as failed."""

    label = "Stop Flow"

    STOP_TYPES = ("complete", "fail", "cancel")

    def handle(self, context):
        stop_type = self.config_value("stop_type", "complete")
        if stop_type not in self.STOP_TYPES:
            stop_type = "complete"
        reason = stringify(self.config_value("reason", ""))

        context.set("_stop_requested", True)
        context.set("_stop_type", stop_type)
        context.set("_stop_reason", reason)

        output_variable = self.config_value("output_variable", "")
        if output_variable:
            context.set("_flow_output", context.get(output_variable))

        message = f"Flow stopped ({stop_type})" + (f": {reason}" if reason else "")
        if stop_type == "fail":
            context.fail(message)
        else:
            context.info(message)
            context.request_stop(reason or None)
        return context


class PauseFlow(ActionBrick):
    """Suspend the run until it is resumed, for example after a human approval."""

    label = "Pause Flow"

    def handle(self, context):
        reason = stringify(self.config_value("reason", ""))
        context.set("_pause_reason", reason)
        context.mark_paused(self.config_value("resume_node", None))
        context.info("Flow paused" + (f": {reason}" if reason else ""))
        return context


class TransformData(ActionBrick):
    """Apply a collection operation to `source` and store it under `store_as`."""

    label = "Transform Data"
    required_fields = ("source",)

    def handle(self, context):
        source = self.config.get("source")
        operation = self.config_value("operation", "pluck")
        store_as = self.config_value("store_as", "transformed_data")

        data = context.get(source) if isinstance(source, str) else source
        if data is None:
            context.warning(f"TransformData: Source '{source}' is null")
            context.set(store_as, None)
            return context

        items = self._as_list(data)
        result = self.apply(operation, data, items)
        context.set(store_as, result)

        info = f"{len(result)} items" if isinstance(result, (list, dict)) else stringify(result)
        context.info(f"TransformData: {operation} on {source} -> {store_as} ({info})")
        return context

    @staticmethod
    def _as_list(data: Any) -> List[Any]:
        if isinstance(data, dict):
            return list(data.values())
        if isinstance(data, (list, tuple)):
            return list(data)
        return [data]

    def _field(self, item: Any) -> Any:
        field = self.config_value("field", "")
        return item.get(field) if isinstance(item, dict) else None

    def apply(self, operation: str, data: Any, items: List[Any]) -> Any:
        field = self.config_value("field", "")
        value = self.config.get("value", "")
        amount = int(self.config_value("amount", 10))
        numbers = [self._field(i) for i in items] if field else items
        numbers = [n for n in numbers if isinstance(n, (int, float)) and not isinstance(n, bool)]

        if operation == "pluck":
            return [self._field(item) for item in items]
        if operation == "filter_not_empty":
            return [item for item in items if item]
        if operation == "filter_by_field":
            return [item for item in items if self._field(item) == value]
        if operation == "sort_asc":
            return sorted(items, key=_sort_key)
        if operation == "sort_desc":
            return sorted(items, key=_sort_key, reverse=True)
        if operation == "sort_by_field":
            return sorted(items, key=lambda item: _sort_key(self._field(item)))
        if operation == "unique":
            seen: List[Any] = []
            result = []
            for item in items:
                marker = self._field(item) if field else item
                if marker not in seen:
                    seen.append(marker)
                    result.append(item)
            return result
        if operation == "flatten":
            return list(_flatten(items))
        if operation == "reverse":
            return list(reversed(items))
        if operation == "take":
            return items[:amount] if amount >= 0 else items[amount:]
        if operation == "skip":
            return items[amount:]
        if operation == "count":
            return len(items)
        if operation == "sum":
            return sum(numbers)
        if operation == "avg":
            return sum(numbers) / len(numbers) if numbers else None
        if operation == "min":
            return min(numbers) if numbers else None
        if operation == "max":
            return max(numbers) if numbers else None
        if operation == "first":
            return items[0] if items else None
        if operation == "last":
            return items[-1] if items else None
        if operation == "keys":
            return list(data.keys()) if isinstance(data, dict) else list(range(len(items)))
        if operation == "values":
            return items
        if operation == "implode":
            separator = stringify(value) or ", "
            parts = [self._field(item) for item in items] if field else items
            return separator.join(stringify(part) for part in parts)
        return data


def _sort_key(item: Any):
    if item is None:
        return (0, 0)
    if isinstance(item, (bool, int, float)):
        return (1, item)
    return (2, stringify(item))


def _flatten(items):
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from _flatten(item)
        elif isinstance(item, dict):
            yield from _flatten(list(item.values()))
        else:
            yield item

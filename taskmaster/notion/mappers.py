from __future__ import annotations

from typing import Any

from taskmaster.schemas.task import Project, Task


def property_value(properties: dict[str, Any], name: str) -> str:
    prop = properties.get(name, {})
    if not isinstance(prop, dict):
        return ""
    prop_type = prop.get("type")
    if prop_type == "title":
        return "".join(x.get("plain_text", "") for x in prop.get("title", []))
    if prop_type == "rich_text":
        return "".join(x.get("plain_text", "") for x in prop.get("rich_text", []))
    if prop_type == "number":
        value = prop.get("number")
        if value is None:
            return ""
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    if prop_type == "select":
        return (prop.get("select") or {}).get("name", "")
    if prop_type == "status":
        return (prop.get("status") or {}).get("name", "")
    if prop_type == "people":
        return ", ".join(p.get("name", "") for p in prop.get("people", []) if p.get("name"))
    if prop_type == "created_time":
        return prop.get("created_time", "") or ""
    return ""


def _number_value(properties: dict[str, Any], name: str) -> float | None:
    prop = properties.get(name, {})
    if not isinstance(prop, dict) or prop.get("type") != "number":
        return None
    return prop.get("number")


def page_to_task(page: dict[str, Any], project_id: str) -> Task:
    properties = page.get("properties", {})
    priority = property_value(properties, "Priority")
    return Task(
        id=page["id"],
        title=property_value(properties, "Title") or "Untitled Task",
        description=property_value(properties, "Description"),
        status=property_value(properties, "Status") or "To Do",
        category=property_value(properties, "Category") or None,
        assignee=property_value(properties, "Assignee") or None,
        priority=priority if priority in {"Low", "Medium", "High", "Critical"} else None,
        effort=_number_value(properties, "Effort"),
        created_at=page.get("created_time") or None,
        project_id=project_id,
    )


def page_to_project(page: dict[str, Any]) -> Project:
    properties = page.get("properties", {})
    return Project(
        id=page["id"],
        name=property_value(properties, "Name"),
        key=property_value(properties, "Key"),
        description=property_value(properties, "Description"),
        owner_id=property_value(properties, "Owner ID"),
        type=property_value(properties, "Type") or None,
        lead=property_value(properties, "Lead") or None,
    )

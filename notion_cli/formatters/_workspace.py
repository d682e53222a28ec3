"""Formatters for databases, blocks, users and comments."""

from notion_cli._utils import database_title, plain_text
from notion_cli.blocks import block_text
from notion_cli.formatters._table import _more_footer, _table, _trunc
from notion_cli.schema import PropertySchema


def _type_summary(entry):
    """One-line type description of a ``PropertySchema.describe()`` entry."""
    ptype = entry.get("type", "?")
    groups = entry.get("groups")
    if groups:
        parts = [f"{group}: {', '.join(names)}" for group, names in groups.items()]
        return f"{ptype} {{{' | '.join(parts)}}}"
    if entry.get("options"):
        return f"{ptype} [{', '.join(entry['options'])}]"
    if entry.get("relation_target"):
        return f"{ptype} -> {entry['relation_target']}"
    if ptype == "rollup" and entry.get("rollup_of"):
        summary = f"rollup({entry['rollup_of']})"
        if entry.get("result_type"):
            summary += f" {entry['result_type']}"
        return summary
    if entry.get("result_type"):
        return f"{ptype} -> {entry['result_type']}"
    return ptype


def format_database_detail(db):
    """Format a database and its property schema as readable text."""
    lines = [f"Database: {database_title(db)}", f"ID:       {db.get('id', '')}"]
    if db.get("url"):
        lines.append(f"URL:      {db['url']}")
    props = db.get("properties") or {}
    lines.append("")
    lines.append(f"Properties ({len(props)}):")
    for name, raw in props.items():
        entry = PropertySchema.from_api(name, raw or {}).describe()
        lines.append(f"  - {name}: {_type_summary(entry)}")
    return "\n".join(lines)


def format_schema(result):
    """Format an ``inspect_schema`` result: one block per property."""
    lines = [f"Database: {result.get('title') or 'Untitled'}"]
    lines.append(f"ID:       {result.get('database_id', '')}")
    if result.get("url"):
        lines.append(f"URL:      {result['url']}")
    if result.get("description"):
        lines.append(f"Description: {result['description']}")
    lines.append("")
    for entry in result.get("properties", []):
        flags = " (read-only)" if entry.get("read_only") else ""
        lines.append(f"  {entry.get('name', '')}{flags}")
        lines.append(f"    Type: {_type_summary(entry)}")
        operators = entry.get("operators")
        if operators:
            lines.append(f"    Filters: {', '.join(operators)}")
    return "\n".join(lines).rstrip()


def format_context(result):
    """Format an ``inspect_context`` result as Markdown for pasting into a prompt."""
    schema = result.get("schema") or {}
    lines = [f"# Notion Database Context: {schema.get('title') or 'Untitled'}", ""]
    if schema.get("description"):
        lines += [f"> {schema['description']}", ""]
    lines += [f"**Database ID:** `{schema.get('database_id', '')}`", ""]
    lines += ["## Schema", "", "| Property | Type | Values |", "|----------|------|--------|"]
    for entry in schema.get("properties", []):
        values = ", ".join(entry.get("options") or []) or "-"
        lines.append(f"| {entry.get('name', '')} | {entry.get('type', '')} | {values} |")
    examples = result.get("examples") or []
    if examples:
        lines += ["", "## Example Entries"]
        for i, example in enumerate(examples, 1):
            lines += ["", f"### Entry {i}", f"ID: {example.get('id', '')}", ""]
            for name, value in (example.get("values") or {}).items():
                lines.append(f"- **{name}:** {value}")
    commands = result.get("commands") or []
    if commands:
        lines += ["", "## Quick Commands", "", "```bash"]
        lines += commands
        lines.append("```")
    return "\n".join(lines)


def format_blocks_table(result):
    blocks = result.get("results", [])
    if not blocks:
        return "No blocks found."
    cols = [("Type", 22), ("Text", 56), ("ID", 0)]
    rows = []
    for block in blocks:
        btype = block.get("type", "?")
        if block.get("has_children"):
            btype += " +"
        rows.append((btype, _trunc(block_text(block), 56) or "-", block.get("id", "")))
    return _table(cols, rows, _more_footer(len(blocks), "blocks", result))


def format_block_detail(block):
    lines = [
        f"Block: {block.get('type', '?')}",
        f"ID:    {block.get('id', '')}",
    ]
    text = block_text(block)
    if text:
        lines.append(f"Text:  {text}")
    if block.get("has_children"):
        lines.append("Has children: yes")
    if block.get("archived"):
        lines.append("Archived: yes")
    return "\n".join(lines)


def _user_email(user):
    return (user.get("person") or {}).get("email", "")


def format_users_table(result):
    users = result.get("results", [])
    if not users:
        return "No users found."
    cols = [("Name", 24), ("Type", 8), ("Email", 30), ("ID", 0)]
    rows = [
        (
            _trunc(user.get("name") or "-", 24),
            user.get("type", "?"),
            _trunc(_user_email(user) or "-", 30),
            user.get("id", ""),
        )
        for user in users
    ]
    return _table(cols, rows, _more_footer(len(users), "users", result))


def format_user_detail(user):
    lines = [f"User: {user.get('name') or '-'}", f"ID:   {user.get('id', '')}"]
    lines.append(f"Type: {user.get('type', '?')}")
    if _user_email(user):
        lines.append(f"Email: {_user_email(user)}")
    bot = user.get("bot") or {}
    workspace = bot.get("workspace_name")
    if workspace:
        lines.append(f"Workspace: {workspace}")
    return "\n".join(lines)


def format_comments_table(result):
    comments = result.get("results", [])
    if not comments:
        return "No comments found."
    cols = [("Created", 17), ("Discussion", 38), ("Text", 0)]
    rows = [
        (
            (c.get("created_time") or "")[:16].replace("T", " "),
            c.get("discussion_id", ""),
            _trunc(plain_text(c.get("rich_text")), 80),
        )
        for c in comments
    ]
    return _table(cols, rows, _more_footer(len(comments), "comments", result))


WORKSPACE_PROPERTY_LIMIT = 8


def format_workspace(result):
    """Format an ``inspect_workspace`` result: each database with a few of its columns."""
    databases = result.get("databases") or []
    if not databases:
        return "No databases shared with the integration."
    lines = []
    for db in databases:
        lines.append(db.get("title") or "Untitled")
        lines.append(f"  ID: {db.get('id', '')}")
        if db.get("description"):
            lines.append(f"  Description: {db['description']}")
        props = [p for p in db.get("properties") or [] if p.get("type") != "title"]
        for entry in props[:WORKSPACE_PROPERTY_LIMIT]:
            lines.append(f"    - {entry.get('name', '')}: {_type_summary(entry)}")
        if len(props) > WORKSPACE_PROPERTY_LIMIT:
            lines.append(f"    ... and {len(props) - WORKSPACE_PROPERTY_LIMIT} more")
        lines.append("")
    lines.append(_more_footer(len(databases), "database(s)", result))
    return "\n".join(lines)

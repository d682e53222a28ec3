"""Formatters for relation links, backlinks and batch reports."""

MENTION_PREVIEW_LIMIT = 10


def format_relation_change(result):
    """Format a link/unlink result, one line per page touched."""
    link = result.get("action", "link") == "link"
    titles = {}
    for side in ("source", "target"):
        page = result.get(side) or {}
        titles[page.get("id")] = page.get("title") or page.get("id", "")
    lines = []
    for change in result.get("changes") or []:
        this, other = change.get("page_id"), change.get("related_id")
        label = f"{titles.get(this, this)} -> {titles.get(other, other)}"
        if change.get("changed"):
            verb = "Linked" if link else "Unlinked"
        else:
            verb = "Already linked" if link else "Not linked"
        lines.append(f"{verb}: {label}")
    lines.append(f"Property: {result.get('property', '')}")
    return "\n".join(lines)


def format_backlinks(result):
    target = result.get("target") or {}
    lines = [f"Backlinks to: {target.get('title') or target.get('id', '')}", ""]
    links = result.get("backlinks") or []
    mentions = result.get("mentions") or []
    if not links and not mentions:
        lines.append("No backlinks found.")
        return "\n".join(lines)
    if links:
        lines.append(f"Direct relations ({len(links)}):")
        for link in links:
            lines.append(f"  - {link.get('title') or '-'} via {link.get('property')}")
            lines.append(f"    ID: {link.get('page_id', '')}")
    if mentions:
        if links:
            lines.append("")
        lines.append(f"Possible mentions ({len(mentions)}):")
        for mention in mentions[:MENTION_PREVIEW_LIMIT]:
            lines.append(f"  - {mention.get('title') or '-'} ({mention.get('page_id', '')})")
        if len(mentions) > MENTION_PREVIEW_LIMIT:
            lines.append(f"  ... and {len(mentions) - MENTION_PREVIEW_LIMIT} more")
    return "\n".join(lines)


def format_batch_report(result):
    """Format batch results: a summary line, then one line per operation."""
    results = result.get("results") or []
    total = result.get("total", len(results))
    lines = [f"Batch: {result.get('succeeded', 0)}/{total} succeeded", ""]
    for row in results:
        mark = "+" if row.get("ok") else "!"
        lines.append(f"  {mark} [{row.get('index')}] {row.get('op')}")
        if row.get("error"):
            lines.append(f"      {row['error']}")
            continue
        outcome = row.get("result")
        if isinstance(outcome, dict) and outcome.get("dry_run"):
            request = outcome.get("request") or {}
            lines.append(f"      DRY RUN: {request.get('method')} {request.get('path')}")
        elif isinstance(outcome, dict) and outcome.get("id"):
            lines.append(f"      ID: {outcome['id']}")
    if len(results) < total:
        lines.append("")
        lines.append(f"Stopped after {len(results)} of {total} operations.")
    return "\n".join(lines)

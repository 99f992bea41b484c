#!/usr/bin/env python3
"""Administrative listing of shared folders, rendered with Jinja2.

Example:
    >>> html = render_listing(reconciler.reconcile())
"""

from typing import Any, Dict, List, Mapping, Optional

import jinja2

from symshare.core.constants import ADD, ADMIN, READ, WRITE
from symshare.grants.entries import (
    Classification,
    describe,
    display_name,
    is_incorrect,
    is_readable,
    is_writable,
    write_name,
)

LISTING_TEMPLATE = """\
<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Shared folders</title>
</head>
<body>
<h1>Shared folders</h1>
{% if rows %}
<table>
<tr><th>Folder</th><th>Read</th><th>Write</th><th>Status</th></tr>
{% for row in rows %}
<tr class="{{ row.css }}">
<td>{{ row.name }}</td>
<td>{% if row.readable %}<a href="/{{ read }}/{{ row.name | urlencode }}/">{{ read }}</a>{% endif %}</td>
<td>{% if row.writable %}<a href="/{{ write }}/{{ row.write_name | urlencode }}/">{{ write }}</a>{% endif %}</td>
<td>{{ row.status }}</td>
</tr>
{% endfor %}
</table>
{% else %}
<p>No folders.</p>
{% endif %}
<form method="post" onsubmit="this.action='/{{ admin }}/{{ add }}/' + encodeURIComponent(this.elements.folder.value)">
<input name="folder" placeholder="new folder">
<button type="submit">Add</button>
</form>
</body>
</html>
"""


def listing_rows(entries: Mapping[str, Classification]) -> List[Dict[str, Any]]:
    """Template rows for ``entries``, sorted by folder name."""
    rows = []
    for name in sorted(entries):
        entry = entries[name]
        if is_writable(entry):
            css = "read-write"
        elif is_readable(entry):
            css = "read-only"
        elif is_incorrect(entry):
            css = "incorrect"
        else:
            css = "unshared"

        rows.append(
            {
                "name": display_name(entry),
                "readable": is_readable(entry),
                "writable": is_writable(entry),
                "write_name": write_name(entry) if is_writable(entry) else None,
                "status": describe(entry),
                "css": css,
            }
        )
    return rows


class ListingRenderer:
    """Renders the admin listing page.

    The Jinja2 environment is created on first use and autoescapes, since
    folder names and symlink targets come straight from the filesystem.
    """

    def __init__(self, template: Optional[str] = None):
        self._template_source = template or LISTING_TEMPLATE
        self._env: Optional[jinja2.Environment] = None
        self._template: Optional[jinja2.Template] = None

    def _get_template(self) -> jinja2.Template:
        if self._template is None:
            self._env = jinja2.Environment(autoescape=True)
            self._template = self._env.from_string(self._template_source)
        return self._template

    def render(self, entries: Mapping[str, Classification]) -> str:
        return self._get_template().render(
            rows=listing_rows(entries), read=READ, write=WRITE, admin=ADMIN, add=ADD
        )


def render_listing(entries: Mapping[str, Classification]) -> str:
    """Render the admin listing with the default template."""
    return ListingRenderer().render(entries)

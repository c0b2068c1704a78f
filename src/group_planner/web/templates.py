"""HTML pages for the calendar connection flow - single file, no build step."""

from __future__ import annotations

from html import escape

_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<style>
:root {{
	--bg: #0d1117;
	--bg-card: #161b22;
	--border: #30363d;
	--text: #c9d1d9;
	--accent: #58a6ff;
	--green: #3fb950;
	--red: #f85149;
}}
* {{ margin: 0; padding: 0; box-sizing: border-box; }}
body {{
	background: var(--bg);
	color: var(--text);
	font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
	line-height: 1.5;
	display: flex;
	justify-content: center;
	padding: 48px 16px;
}}
.card {{
	background: var(--bg-card);
	border: 1px solid var(--border);
	border-radius: 8px;
	padding: 32px;
	max-width: 420px;
	width: 100%;
	text-align: center;
}}
h1 {{ font-size: 22px; margin-bottom: 12px; }}
p {{ margin-bottom: 16px; }}
select, button {{
	width: 100%;
	padding: 10px;
	margin-bottom: 12px;
	border-radius: 6px;
	border: 1px solid var(--border);
	background: var(--bg);
	color: var(--text);
	font-size: 15px;
}}
button {{ background: var(--accent); color: #fff; border: none; cursor: pointer; }}
.ok {{ color: var(--green); }}
.error {{ color: var(--red); }}
</style>
</head>
<body>
<div class="card">
{body}
</div>
</body>
</html>
"""


def _page(title: str, body: str) -> str:
	return _PAGE.format(title=escape(title), body=body)


def select_page(roster: list[str]) -> str:
	"""Participant picker that starts the Google authorization."""
	options = "\n".join(
		f'<option value="{escape(name)}">{escape(name)}</option>' for name in roster
	)
	body = f"""<h1>📅 Connect your calendar</h1>
<p>Pick your name, then sign in with Google so the planner can find a day that works for everyone.</p>
<form action="/auth/google" method="get">
<select name="participant" required>
<option value="" disabled selected>Who are you?</option>
{options}
</select>
<button type="submit">Connect Google Calendar</button>
</form>"""
	return _page("Connect your calendar", body)


def success_page(participant: str) -> str:
	body = f"""<h1 class="ok">✅ Calendar connected</h1>
<p>Thanks, {escape(participant)}! You can close this tab and head back to the group chat.</p>"""
	return _page("Calendar connected", body)


def error_page(message: str) -> str:
	body = f"""<h1 class="error">❌ Could not connect</h1>
<p>{escape(message)}</p>
<p><a href="/">Try again</a></p>"""
	return _page("Could not connect", body)

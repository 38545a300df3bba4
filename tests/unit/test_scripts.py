"""Tests for preview gate and banner injection."""

import json

from builder.publishing.scripts import (
    BANNER_SCRIPT_PATH,
    GATE_SCRIPT_PATH,
    TOKEN_PARAM,
    inject_preview_scripts,
    make_banner_script,
    make_gate_script,
)

LAYOUT = """import "./globals.css";

export default function RootLayout({ children }) {
  return (
    <html lang="en">
      <body>{children}</body>
    </html>
  );
}"""


def paths(files):
    return [f["path"] for f in files]


def by_path(files, path):
    return next(f["content"] for f in files if f["path"] == path)


def test_gate_script_embeds_token_as_literal():
    script = make_gate_script('abc"def')
    assert json.dumps('abc"def') in script
    assert json.dumps(TOKEN_PARAM) in script
    assert "__TOKEN__" not in script
    assert "Preview not available" in script


def test_banner_script_links_build_page_and_status_endpoint():
    script = make_banner_script("proj-1", "https://calypso.build/", "https://api.calypso.build")
    assert '"https://calypso.build/project/proj-1/build"' in script
    assert '"https://api.calypso.build/api/projects/proj-1/preview/status"' in script
    assert "__STATUS_URL__" not in script


def test_next_layout_gets_script_tags():
    files = [
        {"path": "package.json", "content": "{}"},
        {"path": "app/layout.tsx", "content": LAYOUT},
    ]

    injected = inject_preview_scripts(files, "GATE", "BANNER")

    assert paths(injected) == ["package.json", "app/layout.tsx", GATE_SCRIPT_PATH, BANNER_SCRIPT_PATH]
    layout = by_path(injected, "app/layout.tsx")
    assert layout.startswith('import Script from "next/script";\n')
    assert '<Script src="/__preview_gate.js" strategy="beforeInteractive" />' in layout
    assert layout.index("__preview_banner.js") < layout.index("</body>")
    assert by_path(injected, GATE_SCRIPT_PATH) == "GATE"
    # Input untouched
    assert files[1]["content"] == LAYOUT


def test_existing_script_import_not_duplicated():
    content = 'import Script from "next/script";\n' + LAYOUT
    files = [{"path": "package.json", "content": "{}"}, {"path": "src/app/layout.jsx", "content": content}]

    layout = by_path(inject_preview_scripts(files, "G", "B"), "src/app/layout.jsx")

    assert layout.count("next/script") == 1


def test_vite_index_html_gets_tags():
    html = "<html><head><title>x</title></head><body><div id=root></div></body></html>"
    files = [{"path": "package.json", "content": "{}"}, {"path": "index.html", "content": html}]

    injected = inject_preview_scripts(files, "G", "B")

    page = by_path(injected, "index.html")
    assert page.startswith('<html><head><script src="/__preview_gate.js"></script><title>')
    assert page.endswith('<script src="/__preview_banner.js"></script></body></html>')
    assert GATE_SCRIPT_PATH in paths(injected)


def test_static_project_scripts_live_at_root():
    files = [
        {"path": "index.html", "content": "<html><head></head><body></body></html>"},
        {"path": "about.html", "content": "<p>About</p>"},
    ]

    injected = inject_preview_scripts(files, "G", "B")

    assert "__preview_gate.js" in paths(injected)
    assert "__preview_banner.js" in paths(injected)
    assert by_path(injected, "about.html").endswith('<script src="/__preview_banner.js"></script>')

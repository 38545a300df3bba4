"""Scripts injected into preview deployments."""

import json
import re

GATE_SCRIPT_PATH = "public/__preview_gate.js"
BANNER_SCRIPT_PATH = "public/__preview_banner.js"
GATE_SRC = "/__preview_gate.js"
BANNER_SRC = "/__preview_banner.js"
TOKEN_PARAM = "__pv_token"

NEXT_LAYOUT_RE = re.compile(r"^(src/)?app/layout\.(tsx|jsx|ts|js)$")
BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)

_DENIED_HTML = (
    '<body style="margin:0;display:flex;align-items:center;justify-content:center;'
    "height:100vh;font-family:system-ui,-apple-system,sans-serif;background:#fafafa;"
    'color:#71717a"><div style="text-align:center"><h1 style="font-size:18px;'
    'font-weight:600;color:#18181b;margin:0 0 8px">Preview not available</h1>'
    '<p style="font-size:14px;margin:0">This preview link is private.</p></div></body>'
)

_GATE_TEMPLATE = """(function(){
  var T=__TOKEN__,K=__KEY__;
  var p=new URLSearchParams(window.location.search).get(K);
  if(p===T){try{localStorage.setItem(K,T)}catch(e){}
    var u=new URL(window.location);u.searchParams.delete(K);
    window.history.replaceState(null,'',u.toString());return}
  try{if(localStorage.getItem(K)===T)return}catch(e){}
  document.documentElement.innerHTML=__DENIED__;
  window.stop();
})();"""

_BANNER_TEMPLATE = """(function(){
  if(window.__pvBanner)return;window.__pvBanner=true;
  var d=document,K=__KEY__,APP=__APP_URL__,STATUS=__STATUS_URL__;
  var t='';try{t=localStorage.getItem(K)||''}catch(e){}
  var b=d.createElement('div');
  b.setAttribute('style','position:fixed;top:0;left:0;right:0;z-index:999999;display:flex;align-items:center;justify-content:space-between;padding:8px 16px;background:#18181b;color:#fff;font-family:system-ui,-apple-system,sans-serif;font-size:13px;box-shadow:0 2px 8px rgba(0,0,0,.15);');
  function pill(text,color){return '<span style="background:rgba(255,255,255,.08);color:'+color+';padding:2px 8px;border-radius:9999px;font-size:11px;font-weight:500">'+text+'</span>'}
  function link(href,text){return '<a href="'+href+'" style="display:inline-flex;align-items:center;padding:5px 14px;background:#fff;color:#18181b;border-radius:6px;text-decoration:none;font-size:12px;font-weight:600">'+text+'</a>'}
  function render(s){
    var state=pill('Not published','#f59e0b'),action=link(APP,'Publish');
    if(s&&s.published&&s.isStale){state=pill('Update available','#60a5fa');action=link(APP,'Update')}
    else if(s&&s.published){state=pill('Published','#34d399');action=link(s.url,'View site')}
    b.innerHTML='<div style="display:flex;align-items:center;gap:8px"><span style="opacity:.7">Preview</span>'+state+'</div>'+action;
  }
  render(null);
  d.body.prepend(b);
  d.body.style.paddingTop='40px';
  fetch(STATUS+'?token='+encodeURIComponent(t)).then(function(r){return r.ok?r.json():null}).then(render).catch(function(){});
})();"""


def make_gate_script(token: str) -> str:
    """Blocks rendering unless the access token is in the URL or localStorage."""
    return (
        _GATE_TEMPLATE.replace("__TOKEN__", json.dumps(token))
        .replace("__KEY__", json.dumps(TOKEN_PARAM))
        .replace("__DENIED__", json.dumps(_DENIED_HTML))
    )


def make_banner_script(project_id: str, app_url: str, status_api_origin: str) -> str:
    """Top banner showing publish state, linking back to the build page."""
    build_page = f"{app_url.rstrip('/')}/project/{project_id}/build"
    status_url = f"{status_api_origin.rstrip('/')}/api/projects/{project_id}/preview/status"
    return (
        _BANNER_TEMPLATE.replace("__KEY__", json.dumps(TOKEN_PARAM))
        .replace("__APP_URL__", json.dumps(build_page))
        .replace("__STATUS_URL__", json.dumps(status_url))
    )


def _inject_next_layout(content: str) -> str:
    if "next/script" not in content:
        content = f'import Script from "next/script";\n{content}'
    tags = (
        f'<Script src="{GATE_SRC}" strategy="beforeInteractive" />\n'
        f'<Script src="{BANNER_SRC}" strategy="afterInteractive" />\n</body>'
    )
    return BODY_CLOSE_RE.sub(tags, content, count=1)


def _inject_html(html: str) -> str:
    gate_tag = f'<script src="{GATE_SRC}"></script>'
    banner_tag = f'<script src="{BANNER_SRC}"></script>'
    head_open = html.find("<head>")
    if head_open != -1:
        at = head_open + len("<head>")
        html = html[:at] + gate_tag + html[at:]
    body_close = html.rfind("</body>")
    if body_close != -1:
        return html[:body_close] + banner_tag + html[body_close:]
    return html + banner_tag


def inject_preview_scripts(
    files: list[dict[str, str]], gate_js: str, banner_js: str
) -> list[dict[str, str]]:
    """Copy of the file set with the gate and banner wired in.

    A Next.js root layout gets <Script> tags; otherwise every HTML file gets
    the gate at the start of <head> and the banner before </body>. Projects
    without a package.json are served as-is, so their scripts go to the root.
    """
    injected = [dict(f) for f in files]
    static = not any(f["path"] == "package.json" for f in files)
    gate_path = GATE_SRC.lstrip("/") if static else GATE_SCRIPT_PATH
    banner_path = BANNER_SRC.lstrip("/") if static else BANNER_SCRIPT_PATH
    injected.append({"path": gate_path, "content": gate_js})
    injected.append({"path": banner_path, "content": banner_js})

    layout = next((f for f in injected if NEXT_LAYOUT_RE.match(f["path"])), None)
    if layout is not None:
        layout["content"] = _inject_next_layout(layout["content"])
        return injected

    for item in injected:
        if item["path"].endswith(".html"):
            item["content"] = _inject_html(item["content"])
    return injected

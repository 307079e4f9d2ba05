"""Self-contained HTML vault template.

The envelope JSON goes inside the ``vault-data`` script tag. The embedded
viewer can open a vault in any modern browser: it derives the key with
WebCrypto PBKDF2-SHA256 at the same iteration count as the codec and
decrypts with AES-GCM. Editing happens in vaultpad.
"""

from __future__ import annotations

import html

from .core.kdf import ITERATIONS

DATA_TAG_OPEN = '<script id="vault-data" type="text/encrypted-json">'
DATA_TAG_CLOSE = "</script>"
EMPTY_DATA_TAG = DATA_TAG_OPEN + DATA_TAG_CLOSE

VAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>__VAULT_TITLE__</title>
<style>
  body { font-family: system-ui, sans-serif; background: #0a0a0a; color: #d0d0d0;
         max-width: 52rem; margin: 3rem auto; padding: 0 1rem; }
  h1 { color: #00ff41; font-weight: 600; }
  input, textarea { background: #111; color: #e0e0e0; border: 1px solid #0d3b0d;
                    padding: .5rem; font: inherit; }
  textarea { width: 100%; height: 60vh; font-family: ui-monospace, monospace; }
  button { background: #0d3b0d; color: #00ff41; border: 0; padding: .5rem 1rem; }
  #error-message { color: #ff3333; min-height: 1.5rem; }
</style>
</head>
<body>
<h1>__VAULT_TITLE__</h1>
<section id="login-view">
  <form id="login-form">
    <input id="master-password" type="password" placeholder="Master password" autofocus>
    <button type="submit">Unlock</button>
  </form>
  <p id="error-message"></p>
</section>
<section id="main-view" hidden>
  <textarea id="notepad" readonly></textarea>
  <p>Read-only view. Edit this vault with <code>vaultpad edit</code>.</p>
</section>
__VAULT_DATA__
<script>
(() => {
  const ITERATIONS = __VAULT_ITERATIONS__;
  const raw = document.getElementById('vault-data').textContent.trim();
  const error = document.getElementById('error-message');
  const fromB64 = s => Uint8Array.from(atob(s), c => c.charCodeAt(0));
  if (!raw) {
    error.textContent = 'This vault is empty.';
    return;
  }
  document.getElementById('login-form').addEventListener('submit', async event => {
    event.preventDefault();
    error.textContent = '';
    try {
      const envelope = JSON.parse(raw);
      const password = document.getElementById('master-password').value;
      const baseKey = await crypto.subtle.importKey(
        'raw', new TextEncoder().encode(password), 'PBKDF2', false, ['deriveKey']);
      const key = await crypto.subtle.deriveKey(
        {name: 'PBKDF2', salt: fromB64(envelope.salt), iterations: ITERATIONS, hash: 'SHA-256'},
        baseKey, {name: 'AES-GCM', length: 256}, false, ['decrypt']);
      const plain = await crypto.subtle.decrypt(
        {name: 'AES-GCM', iv: fromB64(envelope.iv)}, key, fromB64(envelope.data));
      const payload = JSON.parse(new TextDecoder().decode(plain));
      document.getElementById('notepad').value = payload.content;
      document.getElementById('login-view').hidden = true;
      document.getElementById('main-view').hidden = false;
    } catch (e) {
      error.textContent = 'Invalid password';
    }
  });
})();
</script>
</body>
</html>
"""


def render_vault(title: str = "Vault", envelope_json: str = "") -> str:
    """Render a fresh vault document around *envelope_json* (may be empty)."""
    return (
        VAULT_TEMPLATE
        .replace("__VAULT_TITLE__", html.escape(title))
        .replace("__VAULT_ITERATIONS__", str(ITERATIONS))
        .replace("__VAULT_DATA__", DATA_TAG_OPEN + envelope_json + DATA_TAG_CLOSE)
    )

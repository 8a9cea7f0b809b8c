"""Spotify authorization: browser round trip to a local Flask callback.

The redirect URI registered for the Spotify app (default
http://localhost:1312/callback) decides where the callback server listens.
"""

import threading
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlparse

import requests
import spotipy
from flask import Flask, request
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError
from werkzeug.serving import make_server

from config import AUTH_TIMEOUT, CALLBACK_PATH, CALLBACK_PORT, SPOTIFY_SCOPE
from credentials import SpotifyCredentials
from log import get_logger

logger = get_logger(__name__)


CONFIRMATION_PAGE = """<!doctype html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {
            background: #000;
            margin: 0;
        }
        .container {
            color: #fff;
            left: 50%;
            position: absolute;
            top: 50%;
            text-align: center;
            transform: translate(-50%, -50%);
        }
        h1 {
            font-size: 200px;
            margin: 0;
            white-space: nowrap;
        }
        p {
            font-size: 48px;
        }
    </style>
</head>
<body>
    <div class="container">
        <h1>\U0001F918 Playing \U0001F918</h1>
        <p>You can close this window now.</p>
    </div>
</body>
</html>
"""

FAILURE_PAGE = """<!doctype html>
<html>
<head><meta charset="utf-8"></head>
<body>
    <p>Authorization failed or was cancelled. You can close this window.</p>
</body>
</html>
"""


class AuthError(Exception):
    """Spotify authorization was denied, timed out or the code exchange failed."""


def create_oauth(creds: SpotifyCredentials) -> SpotifyOAuth:
    # Tokens stay in memory; the auth manager refreshes them as needed
    return SpotifyOAuth(
        client_id=creds.client_id,
        client_secret=creds.client_secret,
        redirect_uri=creds.redirect_uri,
        scope=SPOTIFY_SCOPE,
        cache_handler=MemoryCacheHandler(),
        open_browser=False,
    )


def create_app(oauth: SpotifyOAuth, on_result: Callable[[Optional[AuthError]], None],
               path: str = CALLBACK_PATH) -> Flask:
    """Flask app with the single OAuth callback route.

    on_result is called once per callback hit: with None when the code was
    exchanged for tokens, with an AuthError otherwise.
    """
    app = Flask(__name__)

    @app.route(path)
    def callback():
        error = request.args.get("error")
        code = request.args.get("code")
        if error or not code:
            on_result(AuthError(f"Authorization failed: {error or 'no code in callback'}"))
            return FAILURE_PAGE, 400

        try:
            oauth.get_access_token(code, as_dict=False, check_cache=False)
        except (SpotifyOauthError, requests.RequestException) as e:
            on_result(AuthError(f"Token exchange failed: {e}"))
            return FAILURE_PAGE, 400

        on_result(None)
        return CONFIRMATION_PAGE

    return app


def authorize(creds: SpotifyCredentials, open_browser: bool = True,
              timeout: Optional[float] = AUTH_TIMEOUT) -> spotipy.Spotify:
    """
    Run the interactive authorization and return an authenticated client.

    Serves the callback route, sends the browser to Spotify's authorize page
    and blocks until the callback arrives (or timeout seconds pass).

    Raises:
        AuthError: On denial, failed code exchange or timeout
    """
    oauth = create_oauth(creds)

    redirect = urlparse(creds.redirect_uri)
    host = redirect.hostname or "localhost"
    port = redirect.port or CALLBACK_PORT
    path = redirect.path or CALLBACK_PATH

    done = threading.Event()
    outcome: dict = {}

    def on_result(error):
        if not done.is_set():
            outcome["error"] = error
            done.set()

    server = make_server(host, port, create_app(oauth, on_result, path))
    thread = threading.Thread(target=server.serve_forever, name="auth-callback", daemon=True)
    thread.start()

    try:
        url = oauth.get_authorize_url()
        logger.info(f"Waiting for Spotify authorization on {host}:{port}{path}")
        print("\nAuthorize Huertbeat in your browser:\n")
        print(url + "\n")
        if open_browser:
            webbrowser.open(url)

        if not done.wait(timeout):
            raise AuthError(f"No authorization callback within {timeout:g}s")
    finally:
        server.shutdown()
        thread.join()

    if outcome.get("error") is not None:
        raise outcome["error"]

    logger.info("Spotify authorization complete")
    return spotipy.Spotify(auth_manager=oauth)

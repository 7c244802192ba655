"""postpace -- publish a queue of posts through an OAuth2 PKCE-authorized API.

The tool authorizes a single user with the OAuth2 authorization code grant
and PKCE, captures the redirect on a local HTTP listener, exchanges the code
for an access token, and then publishes the lines of a text file one by one
with a fixed pause in between.

Typical workflow::

    postpace check --posts tweets.txt   # validate config and posts
    postpace run --posts tweets.txt     # authorize in the browser, then post

Modules:
    app: Typer application and CLI entry point.
    auth: PKCE primitives, callback listener, token exchange, flow.
    client: Post submission and the paced posting loop.
    config: Settings resolution from the environment and ``.env``.
    posts: Post source parsing.
    models: Pydantic models shared across the package.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.1.0"

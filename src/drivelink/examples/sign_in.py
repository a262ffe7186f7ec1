"""
Sign in to Google Drive from the terminal and list a few files.

You'll need to set DRIVELINK_CLIENT_ID (a .env file works). The OAuth
client must allow http://localhost:8080/callback as a redirect URI, or set
DRIVELINK_REDIRECT_URI to the loopback URI you registered.
"""

import asyncio
import logging

from drivelink.api.client import AuthorizedHTTPClient
from drivelink.api.files import DriveFilesClient
from drivelink.auth.client.models.config import AuthConfig
from drivelink.auth.client.oauth_client import DriveAuthClient
from drivelink.auth.client.transports.loopback import LoopbackCallbackServer


async def main():
    config = AuthConfig.from_env()

    async with DriveAuthClient(config) as auth:
        async with LoopbackCallbackServer(auth.channel, config.redirect_uri):
            await auth.sign_in(use_popup=True)

        state = auth.get_auth_state()
        print(f"Signed in as {state.user_email or 'unknown user'}")

        http = AuthorizedHTTPClient(auth)
        try:
            files = await DriveFilesClient(http, config.root_folder_id).list_files(
                page_size=10
            )
            for file in files.files:
                print(f"{file.id}  {file.name}")
        finally:
            await http.close()
            await auth.sign_out()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())

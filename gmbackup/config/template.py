"""Default configuration template.

This template is written to ~/.config/gmbackup/config.toml
when running `gmbackup-config init`.
"""

CONFIG_TEMPLATE = """\
# gmbackup configuration
# Command line flags take precedence over these values.

[defaults]
# Gmail account to back up, "me" is the signed-in user
user = "me"

# Backup directory
mail_dir = "~/mail"

# Gmail search query selecting the messages to back up
query = "-in:CHAT"

# OAuth client. Either place the credentials.json downloaded from
# Google Cloud Console next to this file, or set client_id here and
# export the secret in GMBACKUP_CLIENT_SECRET.
#
# client_id = "xxxxxx.apps.googleusercontent.com"
#
# After configuring the client, authenticate with:
#   gmbackup-config auth
"""

"""Projects app: project and file routes over the remote stores."""

"""Terminal operator console (argparse + rich)."""

"""Configuration and logging shared by the client and command line."""

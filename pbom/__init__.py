"""PBOM webhook listener: enriches Pipeline Bills of Materials from GitHub Actions runs."""

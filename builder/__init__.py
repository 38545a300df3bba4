"""Site builder service: generate, verify, repair and deploy web projects."""

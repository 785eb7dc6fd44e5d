"""Client-side helpers that talk to the BFF: rate search calls, background prefetch, result filtering."""

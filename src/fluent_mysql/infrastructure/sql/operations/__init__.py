"""Statement fragment builders."""

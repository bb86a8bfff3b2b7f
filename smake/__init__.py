"""smake - minimal build tool: rule freshness reporting."""

"""casset: compile, combine and cache stylesheets and scripts."""

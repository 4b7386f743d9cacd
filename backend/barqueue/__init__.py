"""Bar order queue backend."""

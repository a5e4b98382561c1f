"""JST template compilation into JavaScript, and its tag handlers."""
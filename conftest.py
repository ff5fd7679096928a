pytest_plugins = ["umlsync.test_utils.fixtures"]

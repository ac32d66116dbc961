"""Content records and the services that read and write them remotely."""

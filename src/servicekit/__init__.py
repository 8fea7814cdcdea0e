"""servicekit - install and control programs as operating-system services."""

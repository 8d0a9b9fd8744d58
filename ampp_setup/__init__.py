"""ampp-setup — local Apache/MariaDB/PHP/phpMyAdmin stack provisioning."""

__version__ = "0.1.0"

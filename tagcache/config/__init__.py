"""Configuration module for tagcache."""

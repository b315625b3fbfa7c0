"""Конфигурация проекта pixelflow."""

"""Конфигурация, логирование, исключения"""

"""Периодический запуск доставки"""

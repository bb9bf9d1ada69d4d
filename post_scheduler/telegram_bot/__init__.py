"""Работа с Telegram Bot API"""

"""Доставка запланированных постов в Telegram"""

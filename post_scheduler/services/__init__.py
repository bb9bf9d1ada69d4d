"""Сервисы доставки постов"""

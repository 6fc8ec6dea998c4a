"""Configuration, constants and static reference tables"""

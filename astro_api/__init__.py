"""Astro consultation booking API"""

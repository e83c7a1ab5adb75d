"""Signing services: digest, codec and the URL signer"""

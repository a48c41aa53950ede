"""Git object model, refs and ancestry"""

"""
Example project: a Laptop receives its OS through its constructor, as configured in
the spring-config.xml file of this package.
"""

"""
Example project: a Laptop receives its OS through a setter method, as configured in
the spring-config.xml file of this package.
"""
